"""Print records, their wire codec, the compiler, and the print corpus."""

from .codec import decode_records, encode_record, encode_records, iter_records
from .compiler import PrintCompiler, compile_entry
from .corpus import (
    DEFAULT_PRINTS_DIRNAME,
    FilePrintCorpus,
    MemoryPrintCorpus,
    PrintCorpus,
)
from .models import PrintFile, PrintRecord

__all__ = [
    "DEFAULT_PRINTS_DIRNAME",
    "FilePrintCorpus",
    "MemoryPrintCorpus",
    "PrintCompiler",
    "PrintCorpus",
    "PrintFile",
    "PrintRecord",
    "compile_entry",
    "decode_records",
    "encode_record",
    "encode_records",
    "iter_records",
]
