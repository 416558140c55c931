from .explorer import ExplorerService
from .manager import NodeManager
from .wallet import WalletService

__all__ = ["ExplorerService", "NodeManager", "WalletService"]
