from joan_mcp.mcp_server import main

main()
