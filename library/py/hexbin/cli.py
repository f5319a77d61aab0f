"""Intel Hex to raw binary file converter"""

from argparse import ArgumentParser
from logging import getLogger
from os import getenv
from os.path import basename, isfile
import sys
from traceback import format_exc
from .log import BareLogger
from .misc import (EasyConfigParser, configure_logging, file_generator,
                   pretty_size, to_bool, to_byte)
from .recfmt import BinaryBuilder, IHexParser

# pylint: disable-msg=broad-except


CONFIG_SECTION = 'hex2bin'
"""Section of the configuration file used by the converter"""

CONFIG_ENV = 'HEX2BIN_CONFIG'
"""Environment variable with the path to the default configuration file"""

DEFAULT_FILL = 0xff


def load_config(path):
    """Load the converter configuration.

       :param path: path to an INI file, may be None
       :return: a dictionary with the ``fill`` and ``report`` settings
    """
    config = {'fill': None, 'report': False}
    if not path:
        return config
    if not isfile(path):
        raise ValueError('No such configuration file: %s' % path)
    cfg = EasyConfigParser()
    cfg.read(path)
    fill = cfg.get(CONFIG_SECTION, 'fill')
    if fill is not None:
        config['fill'] = to_byte(fill)
    config['report'] = to_bool(cfg.get(CONFIG_SECTION, 'report', 'no'),
                               permissive=False)
    return config


def prompt_paths(inpath, outpath, fill_required):
    """Interactively ask for the missing paths, and the fill byte.

       :param inpath: the input path, prompted for if None
       :param outpath: the output path, prompted for if None
       :param fill_required: whether to ask for the fill byte
       :return: a (input, output, fill) tuple, fill may be None
    """
    if not inpath:
        inpath = input('HEX file path: ').strip()
    if not outpath:
        outpath = input('Output BIN file path: ').strip()
    fill = None
    if fill_required:
        answer = input('Fill byte (hexadecimal, default: FF): ').strip()
        if answer:
            fill = to_byte(answer)
    return inpath, outpath, fill


def _write_image(out_, builder):
    out_.write(builder.getvalue())


def hex2bin(inpath, outpath, fill=DEFAULT_FILL):
    """Convert an iHex file into a raw binary file.

       The output file is only created once the conversion has succeeded.

       :param inpath: path to the input iHex file
       :param outpath: path to the output binary file
       :param fill: the byte value for unwritten addresses
       :return: the builder that generated the binary image
    """
    log = getLogger('hexbin.cli')
    if not isfile(inpath):
        raise ValueError('File %s does not exist' % inpath)
    log.info('Converting %s -> %s', inpath, outpath)
    builder = BinaryBuilder(fill)
    with open(inpath, 'rt', encoding='ascii', errors='replace') as hfp:
        parser = IHexParser(hfp)
        parser.parse()
    for first, last in parser.get_data_ranges():
        log.debug('Data block: [%08x..%08x]', first, last)
    builder.build(parser.get_memory())
    file_generator(outpath, _write_image, builder)
    log.info('Conversion done, output file size: %d bytes', builder.size)
    return builder


def main(argv=None):
    """Main routine"""

    debug = True
    try:
        argparser = ArgumentParser(prog='hex2bin',
                                   description=sys.modules[__name__].__doc__)
        argparser.add_argument('input', nargs='?',
                               help='path to the input iHex file')
        argparser.add_argument('output', nargs='?',
                               help='path to the output binary file')
        argparser.add_argument('-c', '--config',
                               default=getenv(CONFIG_ENV),
                               help='configuration file (default: $%s)' %
                               CONFIG_ENV)
        argparser.add_argument('-f', '--fill',
                               help='fill byte for unwritten addresses, in '
                                    'hexadecimal (default: FF)')
        argparser.add_argument('-r', '--report', action='store_true',
                               help='show stats about the generated file')
        argparser.add_argument('-l', '--log',
                               help='logfile (defaults to stderr)')
        argparser.add_argument('-v', '--verbose', action='count', default=0,
                               help='increase verbosity')
        argparser.add_argument('-d', '--debug', action='store_true',
                               help='enable debug mode')
        args = argparser.parse_args(argv)
        debug = args.debug

        configure_logging(BareLogger, 2 + args.verbose, debug, args.log)

        config = load_config(args.config)
        fill = config['fill']
        if args.fill is not None:
            fill = to_byte(args.fill)

        if args.input and args.output:
            inpath, outpath = args.input, args.output
        else:
            inpath, outpath, answer = prompt_paths(args.input, args.output,
                                                   fill is None)
            if answer is not None:
                fill = answer
        if fill is None:
            fill = DEFAULT_FILL

        builder = hex2bin(inpath, outpath, fill)

        if args.report or config['report']:
            last = builder.baseaddr + builder.size - 1
            print('Binary file:  %s' % basename(outpath), file=sys.stderr)
            print('Memory range: [%08x..%08x], %s' %
                  (builder.baseaddr, last, pretty_size(builder.size)),
                  file=sys.stderr)

    except Exception as exc:
        print('\nError: %s' % exc, file=sys.stderr)
        if debug:
            print(format_exc(chain=False), file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(2)


if __name__ == '__main__':
    main()
