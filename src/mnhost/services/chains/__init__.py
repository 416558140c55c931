from .registry import BUILTIN_CHAINS, ChainRegistry

__all__ = ["BUILTIN_CHAINS", "ChainRegistry"]
