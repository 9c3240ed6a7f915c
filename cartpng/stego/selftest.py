"""
Codec Self-Test.

Round-trips a random payload that exactly fills the carrier at each bit
density and checks the result byte for byte. This is the correctness
oracle for the packer.
"""

import logging
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..errors import CartError
from .packer import CartPacker, default_packer

logger = logging.getLogger(__name__)


DENSITIES = range(1, 9)


@dataclass
class SelfTestResult:
    """
    Outcome of one density round trip.

    Attributes:
        bits: Density tested
        size: Payload size in bytes
        passed: Whether the decoded payload matched
        error: Message of the codec error, if one was raised
    """

    bits: int
    size: int
    passed: bool
    error: Optional[str] = None

    def __str__(self) -> str:
        if self.passed:
            return f"bits {self.bits} - OK, size {self.size}"
        if self.error:
            return f"bits {self.bits} - ERROR ({self.error})"
        return f"bits {self.bits} - ERROR"


def run_self_test(
    packer: Optional[CartPacker] = None,
    densities: Iterable[int] = DENSITIES,
    seed: Optional[int] = None,
) -> List[SelfTestResult]:
    """
    Round-trip a full-capacity random payload at each density.

    Args:
        packer: Packer to test, the shared default packer when omitted
        densities: Bit densities to test
        seed: Seed for payload generation, for reproducible runs

    Returns:
        One SelfTestResult per density, in order
    """
    packer = packer or default_packer()
    rng = random.Random(seed)
    results = []

    for bits in densities:
        size = packer.capacity(bits)
        payload = rng.randbytes(size)

        try:
            recovered = packer.decode(bits, packer.encode(bits, payload))
        except CartError as e:
            logger.error(f"Self-test at {bits} bits raised {e}")
            results.append(SelfTestResult(bits, size, False, e.message))
            continue

        passed = recovered == payload
        if not passed:
            logger.error(f"Self-test at {bits} bits returned a different payload")
        results.append(SelfTestResult(bits, size, passed))

    return results


def all_passed(results: Iterable[SelfTestResult]) -> bool:
    return all(result.passed for result in results)
