#!/usr/bin/env python3
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

print(
    f"[mcp] model={os.environ.get('MCP_MODEL_NAME', 'deepseek/deepseek-chat')} | "
    f"engine={os.environ.get('MCP_ENGINE_ENV', 'LOCAL')} | "
    f"assets=http://{os.environ.get('MCP_ASSET_PUBLIC_HOST', 'localhost')}:{os.environ.get('MCP_ASSET_PORT', '4001')}/ | "
    f"multiPage={os.environ.get('MCP_ENABLE_MULTI_PAGE', '0')} | "
    f"modelOverride={os.environ.get('MCP_ENABLE_MODEL_OVERRIDE', '0')}",
    file=sys.stderr,
)

from mcp_servers.browser_hub.main import main  # noqa: E402

if __name__ == "__main__":
    main()
