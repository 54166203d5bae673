"""Wire-level names shared across the gateway."""

SERVICE_NAME = "hashi-vault-mcp"

MCP_SERVER_NAME = "vault-mcp-server"
MCP_SERVER_VERSION = "0.1.0"

MCP_PATH = "/mcp"
HEALTH_PATH = "/health"

DEFAULT_KV_MOUNT = "secret"

# JSON-RPC 2.0 "Internal error"
JSONRPC_INTERNAL_ERROR = -32603
