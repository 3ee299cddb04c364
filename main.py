"""
Intro Match Engine - Main Entry Point
=====================================
Run this file to start the FastAPI server.

Usage:
    python main.py                    # Start server on port 8000
    python main.py --port 8080        # Start server on custom port
    python main.py --reload           # Start with auto-reload (dev mode)
    python main.py --log-level DEBUG  # Log parsed entities and name matches

API Documentation:
    http://localhost:8000/docs        # Swagger UI
    http://localhost:8000/redoc       # ReDoc
"""

import argparse
import logging
import uvicorn
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from intro_engine import __version__
from intro_engine.config.settings import LLM_CONFIG, LOG_LEVEL


def build_banner(host: str, port: int, llm_status: str) -> str:
    """Startup box; every row is padded to the border width"""
    server_url = f"http://{host}:{port}"
    docs_url = f"http://localhost:{port}/docs"
    health_url = f"http://localhost:{port}/api/health"

    return f"""
    ╔══════════════════════════════════════════════════════════════╗
    ║                   INTRO MATCH ENGINE                         ║
    ║                      Version {__version__:<32}║
    ╠══════════════════════════════════════════════════════════════╣
    ║  Server starting on {server_url:<41}║
    ║  API Docs: {docs_url:<50}║
    ║  Health:   {health_url:<50}║
    ║  LLM:      {llm_status:<50}║
    ╚══════════════════════════════════════════════════════════════╝
    """


def main():
    parser = argparse.ArgumentParser(description="Intro Match Engine API Server")
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind the server to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run the server on (default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=LOG_LEVEL,
        help=f"Logging level (default: {LOG_LEVEL})",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    llm_status = "Enabled" if LLM_CONFIG.get("api_key") else "Disabled (no API key)"
    print(build_banner(args.host, args.port, llm_status))

    # One process: stored conversations and suggestions live in memory
    uvicorn.run(
        "intro_engine.api.endpoints:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
