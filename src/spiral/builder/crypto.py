"""
Centralized digest operations for the Spiral builder.
"""

from cryptography.hazmat.primitives import hashes

EMPTY_MD5_HEXDIGEST = "d41d8cd98f00b204e9800998ecf8427e"


def _hexdigest(algorithm: hashes.HashAlgorithm, data: bytes) -> str:
    digest = hashes.Hash(algorithm)
    digest.update(data)
    return digest.finalize().hex()


def md5_hexdigest(data: bytes) -> str:
    """Lowercase hex MD5 of `data`, as recorded in a package's md5sums file."""
    return _hexdigest(hashes.MD5(), data)


def sha256_hexdigest(data: bytes) -> str:
    return _hexdigest(hashes.SHA256(), data)


def package_digests(package: bytes) -> dict[str, str | int]:
    """Size and digests of a finished archive, in APT index field names."""
    return {
        "Size": len(package),
        "MD5sum": md5_hexdigest(package),
        "SHA256": sha256_hexdigest(package),
    }
