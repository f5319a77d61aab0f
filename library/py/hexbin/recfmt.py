"""Intel Hex record tools
"""

from binascii import unhexlify
from io import BytesIO
from logging import getLogger
from os import SEEK_SET
from typing import (Dict, Iterable, List, NamedTuple, Optional, Tuple,
                    Union)
from .misc import seq2ranges, to_byte


# pylint: disable-msg=invalid-name


class RecordError(ValueError):
    """Error in text record content"""


class IHexError(RecordError):
    """Error in iHex content"""


class IHexEmptyError(RecordError):
    """No addressed byte in iHex content"""


class IHexRecord(NamedTuple):
    """A decoded iHex line.

       ``address`` is the 16-bit address as encoded in the record, before
       any upper address offset is applied. ``checksum`` is ``None`` if the
       line carries no valid checksum byte; it is never verified.
    """

    size: int
    address: int
    type_: int
    payload: bytes
    checksum: Optional[int] = None


class IHexParser:
    """Intel Hex record file parser.

       Build a sparse memory map, *i.e.* a dictionary of absolute 32-bit
       addresses to byte values, from an iHex text stream.

       :param src: iterable of text lines, or the whole text as a string
    """

    (DATA, EOF, EXT_SEGMENT, EXT_LINEAR) = (0x00, 0x01, 0x02, 0x04)

    MARKER = ':'
    ADDRESS_MASK = (1 << 32) - 1

    def __init__(self, src: Union[str, Iterable[str]]):
        self.log = getLogger('hexbin.recfmt')
        if isinstance(src, str):
            src = src.splitlines()
        self._src = src
        self._offset_addr = 0
        self._memory = {}

    @classmethod
    def decode_record(cls, line: str) -> IHexRecord:
        """Decode a single iHex line.

           :param line: the line, starting with the record marker
           :return: the decoded record
           :raise IHexError: if any field is malformed or truncated
        """
        if not line.startswith(cls.MARKER):
            raise IHexError('Invalid IHEX header')
        header = cls._decode_field(line, 1, 4, 'header')
        size = header[0]
        address = (header[1] << 8) | header[2]
        type_ = header[3]
        payload = cls._decode_field(line, 9, size, 'payload')
        # checksum is optional and never verified
        checksum = None
        cspos = 9 + 2*size
        try:
            checksum = unhexlify(line[cspos:cspos+2])[0]
        except (ValueError, IndexError):
            pass
        return IHexRecord(size, address, type_, payload, checksum)

    def parse(self) -> Dict[int, int]:
        """Parse the iHex stream.

           The upper address offset and the memory map are reset on each
           call.

           :return: the sparse memory map
        """
        self._offset_addr = 0
        self._memory = {}
        for lpos, line in enumerate(self._src, start=1):
            line = line.rstrip()
            if not line or not line.startswith(self.MARKER):
                if line:
                    self.log.debug('Skipping line %d', lpos)
                continue
            self.log.debug('Processing line %d: %s', lpos, line)
            try:
                record = self.decode_record(line)
                self._process(record, lpos)
            except IHexError as exc:
                raise IHexError("%s @ line %d:'%s'" %
                                (exc, lpos, line)) from exc
        return self._memory

    def get_memory(self) -> Dict[int, int]:
        return self._memory

    def get_address_range(self) -> Optional[Tuple[int, int]]:
        """Report the lowest and highest written addresses, if any."""
        if not self._memory:
            return None
        return min(self._memory), max(self._memory)

    def get_data_ranges(self) -> List[Tuple[int, int]]:
        """Report the contiguous runs of written addresses."""
        return seq2ranges(self._memory)

    def _process(self, record: IHexRecord, lpos: int) -> None:
        if record.type_ == self.DATA:
            address = record.address + self._offset_addr
            for pos, value in enumerate(record.payload):
                self._memory[(address + pos) & self.ADDRESS_MASK] = value
        elif record.type_ == self.EOF:
            # does not stop the parser, trailing records are still honored
            self.log.info('End of file record @ line %d', lpos)
        elif record.type_ == self.EXT_SEGMENT:
            if len(record.payload) < 2:
                raise IHexError('Invalid segment address')
            segment = (record.payload[0] << 8) | record.payload[1]
            self._offset_addr = segment << 4
            self.log.info('Extended segment address: 0x%08x',
                          self._offset_addr)
        elif record.type_ == self.EXT_LINEAR:
            if len(record.payload) < 2:
                raise IHexError('Invalid linear address')
            upper = (record.payload[0] << 8) | record.payload[1]
            self._offset_addr = upper << 16
            self.log.info('Extended linear address: 0x%08x',
                          self._offset_addr)
        else:
            self.log.warning('Ignoring unknown IHEX record type 0x%02x '
                             '@ line %d', record.type_, lpos)

    @classmethod
    def _decode_field(cls, line: str, start: int, count: int,
                      name: str) -> bytes:
        end = start + 2*count
        if len(line) < end:
            raise IHexError('Truncated %s: expected %d bytes' % (name, count))
        try:
            return unhexlify(line[start:end])
        except ValueError as exc:
            raise IHexError('Invalid %s: %s' % (name, exc)) from exc


class BinaryBuilder:
    """Raw binary generator.

       Materialize a sparse memory map into a contiguous image spanning
       the lowest to the highest written address. Gaps are filled with
       the fill byte.

       :param fill: the byte value for unwritten addresses
    """

    def __init__(self, fill: int = 0xff):
        self.log = getLogger('hexbin.recfmt')
        self._fill = to_byte(fill)
        self._iofp = BytesIO()
        self._baseaddr = None
        self._size = 0

    def build(self, memory: Dict[int, int]) -> None:
        if not memory:
            raise IHexEmptyError('No valid data found in HEX file')
        min_addr = min(memory)
        max_addr = max(memory)
        # Python integers do not wrap: a full 4 GiB span is 1 << 32
        size = max_addr - min_addr + 1
        self.log.info('Data address range: 0x%08x - 0x%08x',
                      min_addr, max_addr)
        self.log.info('Data total size: %d bytes', size)
        image = bytearray([self._fill]) * size
        for address, value in memory.items():
            index = address - min_addr
            if not 0 <= index < size:
                raise RuntimeError('Address 0x%08x out of image' % address)
            image[index] = value
        self._baseaddr = min_addr
        self._size = size
        self._iofp = BytesIO(image)
        self._iofp.seek(0, SEEK_SET)

    @property
    def baseaddr(self) -> Optional[int]:
        return self._baseaddr

    @property
    def size(self) -> int:
        return self._size

    def getvalue(self) -> bytes:
        return self._iofp.getvalue()

    @property
    def io(self):
        return self._iofp


def convert(src: Union[str, Iterable[str]], fill: int = 0xff) -> bytes:
    """Convert an iHex text stream into a flat binary image.

       :param src: iterable of text lines, or the whole text as a string
       :param fill: the byte value for unwritten addresses
       :return: the binary image, starting at the lowest written address
       :raise IHexError: on the first malformed record
       :raise IHexEmptyError: if no data record has been found
    """
    builder = BinaryBuilder(fill)
    parser = IHexParser(src)
    parser.parse()
    builder.build(parser.get_memory())
    return builder.getvalue()
