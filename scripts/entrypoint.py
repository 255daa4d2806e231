import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("entrypoint")


def main() -> None:
  """Launch the notification relay under uvicorn."""
  port = os.getenv("PORT", "8080")
  logger.info("Starting notify-relay on port %s", port)
  # Replace the current process so uvicorn receives SIGTERM from the platform directly.
  args = ["uvicorn", "notify_relay.main:app", "--host", "0.0.0.0", "--port", port, "--no-server-header", "--proxy-headers"]
  os.execvp("uvicorn", args)


if __name__ == "__main__":
  main()
