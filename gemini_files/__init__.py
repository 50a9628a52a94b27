"""
Gemini Files Tools - Safety-gated access to the Gemini Files API

Two front-ends over one backend client:
- CLI: `gemini-files upload|list|get|delete|download`
- MCP server: JSON-RPC 2.0 over stdio with Content-Length framing

Key Properties:
- Read-only by default: mutating operations need an explicit safety mode
- One gate: both front-ends call the same pure decision function
- Classified failures: every error leaves as validation/auth/api/network/internal
"""

__version__ = "0.1.0"
