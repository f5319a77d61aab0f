"""Miscelleanous helpers

"""

import logging
from configparser import ConfigParser
from os import makedirs, unlink
from os.path import basename, dirname, isdir
from re import match
from shutil import move
from tempfile import NamedTemporaryFile
from typing import Sequence, Tuple


TRUE_BOOLEANS = ['on', 'high', 'true', 'enable', 'enabled', 'yes', '1']
"""String values evaluated as true boolean values"""

FALSE_BOOLEANS = ['off', 'low', 'false', 'disable', 'disabled', 'no', '0']
"""String values evaluated as false boolean values"""


def to_byte(value):
    """Parse a byte value, as used for the image fill byte.

       Strings are always read as hexadecimal values, with or without a
       ``0x`` prefix, so ``FF``, ``ff`` and ``0xff`` are equivalent.

       :param value: input value to convert to a byte
       :type value: str or int
       :return: the value as an integer
       :rtype: int
       :raise ValueError: if the input value is not a valid byte value
    """
    if isinstance(value, bool):
        raise ValueError('Invalid byte value: %r' % value)
    if isinstance(value, str):
        mo = match(r'^\s*(?:0[xX])?([0-9A-Fa-f]{1,2})\s*$', value)
        if not mo:
            raise ValueError('Invalid byte value: %r' % value)
        return int(mo.group(1), 16)
    if not isinstance(value, int) or not 0 <= value <= 0xff:
        raise ValueError('Invalid byte value: %r' % value)
    return value


def to_bool(value, permissive=True):
    """Parse a string and convert it into a boolean value if possible.

       :param str value: the value to parse and convert
       :param bool permissive: default to the False value if parsing fails
       :rtype: bool
       :raise ValueError: if the input value cannot be converted into an bool
    """
    if value.lower() in TRUE_BOOLEANS:
        return True
    if permissive or (value.lower() in FALSE_BOOLEANS):
        return False
    raise ValueError('Invalid boolean value: "%s"' % value)


def pretty_size(size, sep=' ', lim_k=1 << 10, lim_m=10 << 20, plural=True,
                floor=True):
    """Convert a size into a more readable unit-indexed size (KiB, MiB)

       :param int size: integral value to convert
       :param str sep: the separator character between the integral value and
            the unit specifier
       :param int lim_k: any value above this limit is a candidate for KiB
            conversion.
       :param int lim_m: any value above this limit is a candidate for MiB
            conversion.
       :param bool plural: whether to append a final 's' to byte(s)
       :param bool floor: how to behave when exact conversion cannot be
            achieved: take the closest, smaller value or fallback to the next
            unit that allows the exact representation of the input value
       :return: the prettyfied size
       :rtype: str
    """
    size = int(size)
    if size > lim_m:
        ssize = size >> 20
        if floor or (ssize << 20) == size:
            return '%d%sMiB' % (ssize, sep)
    if size > lim_k:
        ssize = size >> 10
        if floor or (ssize << 10) == size:
            return '%d%sKiB' % (ssize, sep)
    return '%d%sbyte%s' % (size, sep, (plural and 's' or ''))


def seq2ranges(seq: Sequence[int]) -> Sequence[Tuple[int, int]]:
    """Find continous ranges of integers in a list.

       :param seq: the sequence of integer to parse
       :return: a sequence of tuple of range of integers
    """
    ranges = []
    first = last = None
    for item in sorted(seq):
        if not isinstance(item, int):
            raise TypeError('Sequence contains non-integer values')
        if first is None:
            first = item
            last = item
            continue
        if item == last+1:
            last = item
            continue
        ranges.append((first, last))
        first = last = item
    if first is not None:
        ranges.append((first, last))
    return ranges


def file_generator(path, action, *args):
    """Simple helper to build output files.

       Create the destination directory if it does not yet exist

       Remove the file if the builder fails

       Use a temporary file to avoid discarding a previous valid file,
       hence assuring its atomicity

       :param path: pathname of the file
       :param action: a callable that builds the output stream content
       :param args: a list of optional arguments to pass over to action
    """
    tmppath = None
    try:
        outdir = dirname(path)
        if outdir and not isdir(outdir):
            makedirs(outdir)
        with NamedTemporaryFile(mode='wb', prefix=basename(path),
                                dir=outdir or None, delete=False) as out_:
            tmppath = out_.name
            action(out_, *args)
        move(tmppath, path)
    except Exception:
        try:
            if tmppath:
                unlink(tmppath)
        except OSError:
            pass
        raise


def configure_logging(logger, verbosity, longfmt, logdest=None):
    """Configure a top-level logger for a command line script.

       :param logger: the logger class to reconfigure
       :param verbosity: a verbosity level, usually args.verbose
       :param longfmt: a boolean value, to use a detailed format
       :param logdest: a log file for the output stream, defaults to stderr
       :return: the loglevel, in logging enumerated value
    """
    loglevel = max(logging.DEBUG, logging.ERROR - (10 * (verbosity or 0)))
    loglevel = min(logging.ERROR, loglevel)
    if longfmt:
        formatter = logging.Formatter(
            r'%(asctime)s.%(msecs)03d %(levelname)-8s %(name)-16s '
            r'%(message)s', '%H:%M:%S')
    else:
        formatter = logging.Formatter('%(message)s')
    # do not propagate log message above this top-level logger
    logger.log.propagate = False
    if logdest:
        for handler in list(logger.log.handlers):
            if isinstance(handler, logging.StreamHandler):
                logger.log.removeHandler(handler)
        logger.log.addHandler(logging.FileHandler(logdest))
    logger.set_formatter(formatter)
    logger.set_level(loglevel)
    return loglevel


class EasyConfigParser(ConfigParser):
    """ConfigParser extension to support default config values"""

    def get(self, section, option, default=None, raw=True, vars=None,
            fallback=None):
        """Return the section:option value if it exists, or the default value
           if either the section or the option is missing"""
        if not self.has_section(section):
            return default
        if not self.has_option(section, option):
            return default
        return ConfigParser.get(self, section, option, raw=raw, vars=vars,
                                fallback=fallback)
