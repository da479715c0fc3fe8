import os
import logging
from pathlib import Path

try:
	from dotenv import load_dotenv
except ImportError:
	logging.warning("python-dotenv not available; using environment variables only")
else:
	loaded = load_dotenv()
	if not loaded and Path(".env").exists():
		raise RuntimeError(".env file present but failed to load")

DEFAULT_USER_AGENT = "LinkCrawl/0.1"
DEFAULT_HTTP_TIMEOUT = 10
DEFAULT_MAX_WORKERS = 10
DEFAULT_MAX_RETRY_COUNT = 1
DEFAULT_EXCLUDED_EXTENSIONS = ("pdf", "jpg", "csv", "png")


def get_str_env(name: str, default: str) -> str:
	raw = os.getenv(name)
	if raw is None or raw == "":
		return default
	return raw


def get_int_env(name: str, default: int) -> int:
	raw = os.getenv(name)
	if raw is None or raw == "":
		return default
	try:
		return int(raw)
	except Exception:
		logging.exception("Invalid %s: %r", name, raw)
		return default


def get_list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
	"""Comma-separated list; blank items are dropped."""
	raw = os.getenv(name)
	if raw is None or raw.strip() == "":
		return tuple(default)
	return tuple(item.strip() for item in raw.split(",") if item.strip())


def user_agent() -> str:
	return get_str_env("USER_AGENT", DEFAULT_USER_AGENT)


def http_timeout() -> int:
	return get_int_env("HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT)


def max_workers() -> int:
	return get_int_env("LINKCRAWL_MAX_WORKERS", DEFAULT_MAX_WORKERS)


def max_retry_count() -> int:
	return get_int_env("LINKCRAWL_MAX_RETRY_COUNT", DEFAULT_MAX_RETRY_COUNT)


def excluded_extensions() -> tuple[str, ...]:
	return get_list_env("LINKCRAWL_EXCLUDED_EXTENSIONS", DEFAULT_EXCLUDED_EXTENSIONS)
