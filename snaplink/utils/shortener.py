"""Shortcode generation utility

This module derives short, deterministic, Base62-safe codes from long URLs.

Functions:
    generate_shortcode(value, length=7, seed=0):
        Hash a string into a fixed-width Base62 code.

    mutate_candidate(value):
        Derive the next hash input after a collision.

Example:
    >>> from snaplink.utils import generate_shortcode, mutate_candidate
    >>> code = generate_shortcode('https://example.com/some/long/path')
    >>> len(code)
    7
    >>> retry = generate_shortcode(mutate_candidate('https://example.com/some/long/path'))
    >>> retry != code
    True
"""

import string

import xxhash


ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
BASE = len(ALPHABET)  # 26 lowercase + 26 uppercase + 10 digits


def generate_shortcode(value: str, length: int = 7, seed: int = 0) -> str:
    """Hash a string into a short, fixed-length Base62 code.

    The value is hashed with xxhash64 (fast, stable across processes and
    platforms, non-cryptographic), reduced modulo BASE^length and encoded into
    the Base62 alphabet [a-zA-Z0-9].

    Args:
        value (str):
            Hash input, usually the long URL (or a mutated candidate of it).

        length (int, optional):
            Length of the resulting code. Defaults to 7 (62^7 ~ 3.5e12 codes).

        seed (int, optional):
            xxhash seed. Defaults to 0. Changing the seed changes every code,
            so it must stay fixed for the lifetime of a deployment.

    Returns:
        str: A Base62 code of exactly `length` characters.

    NOTE:
        - Collision resistance, not secrecy, is the goal. Codes are guessable
          by anyone who knows the long URL and the seed.
        - Collisions are resolved by the caller via mutate_candidate().
    """
    if not isinstance(value, str):
        raise TypeError(f'Value must be of type string (given type: {type(value)}).')
    if not value:
        raise ValueError('Value must be a non-empty string.')
    if not isinstance(length, int) or isinstance(length, bool):
        raise TypeError(f'Length must be of type integer (given type: {type(length)}).')
    if length < 1:
        raise ValueError(f'Length must be a positive integer (given value: {length}).')

    number = xxhash.xxh64_intdigest(value, seed=seed) % BASE**length

    # Encode most significant digit first, padded to a fixed width with ALPHABET[0]
    return ''.join(reversed([ALPHABET[(number // BASE**i) % BASE] for i in range(length)]))


def mutate_candidate(value: str) -> str:
    """Derive the next hash input after a collision.

    Appends one character drawn from `value` itself, at an index picked by
    xxhash32 of `value`. The result is always one character longer than the
    input, so a chain of retries never revisits an earlier hash input, even
    when the same character gets appended repeatedly.

    Example:
        >>> mutate_candidate('https://a.io')
        'https://a.io/'  # actual appended character depends on the hash
    """
    if not isinstance(value, str):
        raise TypeError(f'Value must be of type string (given type: {type(value)}).')
    if not value:
        raise ValueError('Value must be a non-empty string.')

    index = xxhash.xxh32_intdigest(value) % len(value)
    return value + value[index]
