"""Tool schemas for MCP server.

Defines JSON Schema for each tool's input parameters.
"""

INIT_TOOL_NAME = "init"

TOOL_SCHEMAS = {
    INIT_TOOL_NAME: {
        "description": "Write embedded template files to a target directory. Refuses to overwrite existing files.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "directory": {
                    "type": "string",
                    "description": "Absolute path to the directory where files will be created"
                }
            },
            "required": ["directory"]
        }
    },
}
