# Starling editor client
#
# Modular package structure:
# - config.py: Settings loaded from STARLING_ environment variables
# - logging.py: structlog configuration
# - models.py: Pydantic models for nodes, gateway results and completion items
# - gateway.py: Gateway class for JSON requests to the Starling server
# - cache.py: NodeCacheStore class for the debounced node/root cache
# - brackets.py: Bracket classification and the completion trigger
# - completion.py: Completion source built from the node cache
# - links.py: Link extraction and opening
# - autoreload.py: Per-buffer recheck timers
# - editor.py: Editor protocol the client drives
# - client.py: StarlingClient wiring editor events to the components
# - plugin.py: Neovim remote plugin