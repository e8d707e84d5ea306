import argparse
import contextlib
import json
import logging
import os
import sys

import utils.others as otherutils
from core.attachments import upload_images
from core.composer import build_post_record, submit_post
from core.facets import annotate
from core.threads import resolve_thread
from socials.bluesky_client import DEFAULT_PDS_URL, BlueskyClient, BlueskyConfig
from socials.errors import BlueskyError
from utils.config import ConfigError, get_setting, load_config

logger = logging.getLogger("create_bsky_post")

PASSWORD_ENV_VAR = "BSKY_APP_PASSWORD"


class PostAborted(Exception):
    """A pipeline stage failed; nothing was posted."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Failed to {stage}: {cause}")


@contextlib.contextmanager
def _stage(name):
    try:
        yield
    except BlueskyError as e:
        logger.error("Failed to %s: %s", name, e)
        raise PostAborted(name, e) from e


def build_parser():
    # fmt: off
    parser = argparse.ArgumentParser(description="Create a single Bluesky post (optionally a reply, optionally with an image).")
    parser.add_argument("--handle", type=str, help="Bluesky handle (falls back to bluesky.handle in the config file).")
    parser.add_argument("--password", type=str, help=f"Bluesky app password (falls back to ${PASSWORD_ENV_VAR}).")
    parser.add_argument("--text", type=str, help="Text to post.")
    parser.add_argument("--parent-uri", "--parentURI", dest="parent_uri", type=str, help="at:// URI or bsky.app URL of the post to reply to.")
    parser.add_argument("--image-path", "--imagePath", dest="image_path", type=str, help="Path to an image to attach (png, jpg, webp).")
    parser.add_argument("--alt-text", "--altText", dest="alt_text", type=str, default="", help="Alt text for the attached image.")
    parser.add_argument("--custom-date", "--customDate", dest="custom_date", type=str, help="Custom creation date (format: DD/MM/YYYY hh:mm). Defaults to now.")
    parser.add_argument("--pds-url", dest="pds_url", type=str, help=f"PDS base URL (default: {DEFAULT_PDS_URL}).")
    parser.add_argument("--config", type=str, help="Optional path to a YAML configuration file.")
    parser.add_argument("--console", action="store_true", help="Write logs to console instead of a file.")
    parser.add_argument("--log-dir", dest="log_dir", type=str, help="Directory for log files (default: ./logs, or script.log_dir in the config file).")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    # fmt: on
    return parser


def run(args, client, created_at=None):
    """
    Log in, build facets, resolve the reply thread, upload the image and post.

    Stages run strictly in order; the first failure raises PostAborted and
    nothing is posted. `created_at` overrides the post's timestamp.
    """
    with _stage("login"):
        session = client.create_session(args.handle, args.password)

    with _stage("parse facets"):
        facets = annotate(args.text, client.resolve_handle)

    reply = None
    if args.parent_uri:
        with _stage("get reply refs"):
            reply = resolve_thread(client, args.parent_uri)

    embed = None
    if args.image_path:
        with _stage("upload images"):
            embed = upload_images(client, session.access_jwt, [args.image_path], args.alt_text)

    record = build_post_record(args.text, facets=facets, reply=reply, embed=embed, created_at=created_at)

    with _stage("post"):
        return submit_post(client, session, record)


def main(argv=None, request=None):
    """
    Entry point: parse flags, load config, set up logging and publish one post.

    Returns the process exit code. Usage errors (missing handle/password/text,
    text that is not valid UTF-8, bad config, unwritable log directory, bad
    --custom-date) exit through argparse before any request. `request` is an
    optional atproto Request to send XRPC calls through.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Undecodable argv bytes arrive as lone surrogates
    if args.text:
        try:
            args.text.encode("utf-8")
        except UnicodeEncodeError as e:
            parser.error(f"Text is not valid UTF-8: {e}")

    try:
        config = load_config(args.config)
    except ConfigError as e:
        parser.error(str(e))

    try:
        otherutils.setup_logging(config, console=args.console, debug=args.debug, log_dir=args.log_dir)
    except (OSError, TypeError) as e:
        parser.error(f"Cannot write log files: {e}")

    # Resolve credentials: flag -> environment (password) / config (handle)
    args.handle = args.handle or get_setting(config, "bluesky", "handle")
    args.password = args.password or os.getenv(PASSWORD_ENV_VAR)
    otherutils.log_startup_info(args, config)

    if not args.handle or not args.password or not args.text:
        logger.error("handle, password, and text are required")
        parser.error("handle, password, and text are required")

    created_at = None
    if args.custom_date:
        try:
            tz_name = get_setting(config, "script", "timezone", "UTC")
            created_at = otherutils.parse_custom_date(args.custom_date, tz_name)
        except ValueError as e:
            parser.error(f"Invalid custom date format: {e}")

    timeout = raw_timeout = get_setting(config, "bluesky", "timeout")
    if raw_timeout is not None:
        try:
            timeout = float(raw_timeout)
            if not timeout > 0:
                raise ValueError(raw_timeout)
        except (TypeError, ValueError):
            parser.error(f"Invalid bluesky.timeout in config: {raw_timeout!r} (expected a positive number of seconds)")

    cfg = BlueskyConfig(
        pds_url=args.pds_url or get_setting(config, "bluesky", "pds_url", DEFAULT_PDS_URL),
        timeout=timeout,
    )
    client = BlueskyClient(cfg, request=request)

    try:
        result = run(args, client, created_at=created_at)
    except PostAborted as e:
        print(str(e), file=sys.stderr)
        return 1
    finally:
        client.close()

    print(f"Post successful: {json.dumps(result)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
