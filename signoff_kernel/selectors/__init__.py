"""Read-only query selectors."""

from signoff_kernel.selectors.base import BaseSelector
from signoff_kernel.selectors.chain_selector import ChainSelector

__all__ = ["BaseSelector", "ChainSelector"]
