from mcp_manager.cli import main

main()
