# Neovim discovers remote plugins from rplugin/python3 on the runtimepath.
# The plugin itself lives in the installed starling_client package.
from starling_client.plugin import StarlingPlugin  # noqa: F401
