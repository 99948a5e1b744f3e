import uvicorn
import os

if __name__ == "__main__":
    port = int(os.environ.get("MESSAGE_FLAGS_PORT", "8000"))

    print("Starting Message Flags API Server...")
    print(f"Docs available at: http://localhost:{port}/docs")

    uvicorn.run(
        "message_flags.api.server:app",
        host="0.0.0.0",
        port=port,
        reload=True
    )
