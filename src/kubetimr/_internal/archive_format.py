"""Solve archive wire format."""

import struct

import msgpack
import zstandard as zstd

MAGIC = b"KTMR"

# [magic:4s][schema_version:u16][saved_at_ms:u64][blob_len:u32]
_HEADER = struct.Struct("<4sHQI")


def pack_archive(document: dict, schema_version: int, saved_at_ms: int) -> bytes:
    """
    Pack a persisted document into the archive format.

    Wire format: [magic "KTMR"][schema_version:u16][saved_at_ms:u64][blob_len:u32][blob]
    The blob is the zstd-compressed msgpack encoding of the document.
    """
    blob = zstd.ZstdCompressor().compress(msgpack.packb(document, use_bin_type=True))
    return _HEADER.pack(MAGIC, schema_version, saved_at_ms, len(blob)) + blob


def unpack_archive(data: bytes) -> dict:
    """
    Unpack an archive produced by pack_archive().

    Returns dict with schema_version, saved_at_ms, document.
    Raises ValueError on a bad magic, a truncated file or an undecodable blob.
    """
    if len(data) < _HEADER.size:
        raise ValueError(f"Archive truncated: {len(data)} bytes, header needs {_HEADER.size}")
    magic, schema_version, saved_at_ms, blob_len = _HEADER.unpack_from(data, 0)
    if magic != MAGIC:
        raise ValueError(f"Not a solve archive (magic {magic!r})")

    offset = _HEADER.size
    blob = data[offset : offset + blob_len]
    if len(blob) != blob_len:
        raise ValueError(f"Archive truncated: blob needs {blob_len} bytes, got {len(blob)}")

    try:
        document = msgpack.unpackb(zstd.ZstdDecompressor().decompress(blob), raw=False)
    except (zstd.ZstdError, msgpack.UnpackException, ValueError) as e:
        raise ValueError(f"Archive blob could not be decoded: {e}") from e
    if not isinstance(document, dict):
        raise ValueError("Archive document is not a mapping")

    return {
        "schema_version": schema_version,
        "saved_at_ms": saved_at_ms,
        "document": document,
    }
