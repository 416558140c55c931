"""Error classes raised by the node manager and its collaborators."""

from __future__ import annotations

__all__ = [
    "MnHostError",
    "SettingsError",
    "StorageError",
    "AuthError",
    "UsernameTakenError",
    "UnknownChainError",
    "NoReleasesError",
    "UnsupportedPlatformError",
    "NoReleaseForPlatformError",
    "DownloadError",
    "ChecksumMismatchError",
    "ExtractError",
    "ChainConflictError",
    "NodeIdConflictError",
    "PortAllocationExhaustedError",
    "DaemonNotFoundError",
    "RpcError",
    "RpcTransportError",
    "RpcProtocolError",
    "NodeNotFoundError",
    "NoNodesForChainError",
]


class MnHostError(RuntimeError):
    """Base error for node manager flows."""

    error_code: str = "mnhost_error"
    status_code: int = 400

    def __init__(self, message: str, *, error_code: str | None = None) -> None:
        super().__init__(message)
        if error_code:
            self.error_code = error_code


class SettingsError(MnHostError):
    error_code = "settings_error"
    status_code = 500


class StorageError(MnHostError):
    """Raised when the persistence layer fails."""

    error_code = "storage_error"
    status_code = 500


class AuthError(MnHostError):
    error_code = "unauthorized"
    status_code = 401


class UsernameTakenError(MnHostError):
    error_code = "username_taken"
    status_code = 409

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__("Username already exists")


class UnknownChainError(MnHostError):
    error_code = "unknown_chain"
    status_code = 404

    def __init__(self, chain_id: str) -> None:
        self.chain_id = chain_id
        super().__init__(f"Unknown chain: {chain_id}")


class NoReleasesError(MnHostError):
    error_code = "no_releases"

    def __init__(self, chain_id: str) -> None:
        self.chain_id = chain_id
        super().__init__(f"No releases configured for {chain_id}")


class UnsupportedPlatformError(MnHostError):
    error_code = "unsupported_platform"
    status_code = 500

    def __init__(self, system: str, machine: str) -> None:
        self.system = system
        self.machine = machine
        super().__init__(f"Unsupported platform: {system} {machine}")


class NoReleaseForPlatformError(MnHostError):
    error_code = "no_release_for_platform"

    def __init__(self, chain_id: str, version: str, platform_key: str) -> None:
        self.chain_id = chain_id
        self.version = version
        self.platform_key = platform_key
        super().__init__(f"No release for {chain_id} {version} ({platform_key})")


class DownloadError(MnHostError):
    error_code = "download_failed"
    status_code = 502

    def __init__(self, url: str, reason: str, *, status: int | None = None) -> None:
        self.url = url
        self.status = status
        super().__init__(f"Download failed for {url}: {reason}")


class ChecksumMismatchError(MnHostError):
    error_code = "checksum_mismatch"

    def __init__(self, path: str, expected: str, actual: str) -> None:
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(f"SHA256 mismatch for {path}: expected {expected}, got {actual}")


class ExtractError(MnHostError):
    error_code = "extract_failed"
    status_code = 500


class ChainConflictError(MnHostError):
    """Raised when an owner already runs a node for the requested chain."""

    error_code = "chain_conflict"
    status_code = 409

    def __init__(self, chain_id: str, existing_node_id: str) -> None:
        self.chain_id = chain_id
        self.existing_node_id = existing_node_id
        super().__init__(f"Only one node per chain is allowed. {chain_id} already exists ({existing_node_id}).")


class NodeIdConflictError(MnHostError):
    error_code = "node_id_conflict"
    status_code = 409

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"Node id already in use: {node_id}")


class PortAllocationExhaustedError(MnHostError):
    error_code = "ports_exhausted"
    status_code = 503

    def __init__(self, start: int) -> None:
        self.start = start
        super().__init__(f"No free port at or above {start}")


class DaemonNotFoundError(MnHostError):
    error_code = "daemon_not_found"
    status_code = 500

    def __init__(self, daemon_name: str, search_root: str) -> None:
        self.daemon_name = daemon_name
        self.search_root = search_root
        super().__init__(f"Daemon not found: {daemon_name} (searched {search_root})")


class RpcError(MnHostError):
    """Base class for daemon JSON-RPC failures."""

    error_code = "rpc_error"
    status_code = 502

    def __init__(self, message: str, *, method: str | None = None) -> None:
        self.method = method
        super().__init__(message)


class RpcTransportError(RpcError):
    """The daemon could not be reached or answered with a non-success HTTP status."""

    error_code = "rpc_unavailable"

    def __init__(self, message: str, *, method: str | None = None, http_status: int | None = None) -> None:
        self.http_status = http_status
        super().__init__(message, method=method)


class RpcProtocolError(RpcError):
    """The daemon answered but the JSON-RPC envelope carries an error."""

    error_code = "rpc_failed"

    def __init__(self, message: str, *, method: str | None = None, rpc_code: int | None = None) -> None:
        self.rpc_code = rpc_code
        super().__init__(message, method=method)


class NodeNotFoundError(MnHostError):
    error_code = "node_not_found"
    status_code = 404

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"Node not found: {node_id}")


class NoNodesForChainError(MnHostError):
    error_code = "no_nodes_for_chain"
    status_code = 404

    def __init__(self, chain_id: str) -> None:
        self.chain_id = chain_id
        super().__init__(f"No nodes available for chain: {chain_id}")
