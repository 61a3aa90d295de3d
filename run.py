"""
Application entry point.

Starts FastAPI server.
"""
import uvicorn
import sys

import config


if __name__ == "__main__":
    print("=" * 60)
    print("fedtrust - Trust & Safety Scoring for Fediverse Instances")
    print("=" * 60)
    print()
    print("Starting server...")
    print(f"API: http://localhost:{config.API_PORT}")
    print(f"API Docs: http://localhost:{config.API_PORT}/docs")
    print()
    print("Press Ctrl+C to stop")
    print("=" * 60)
    print()

    try:
        uvicorn.run(
            "fedtrust.api:app",
            host=config.API_HOST,
            port=config.API_PORT,
            reload=False,
            log_level="info"
        )
    except KeyboardInterrupt:
        print("\n\nShutting down...")
        sys.exit(0)
