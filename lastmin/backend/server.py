from __future__ import annotations

import os

import uvicorn


def main() -> None:
	port = os.getenv("LASTMIN_PORT", "").strip()
	uvicorn.run(
		"lastmin.backend.main:app",
		host=os.getenv("LASTMIN_HOST", "127.0.0.1").strip() or "127.0.0.1",
		port=int(port) if port.isdigit() else 5000,
		log_level="info",
	)


if __name__ == "__main__":
	main()
