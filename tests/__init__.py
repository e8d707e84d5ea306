"""
Tests package for create-bsky-post

This package contains all unit and integration tests.

Test organization:
- test_facets.py: Mention / link detection and byte offsets
- test_uris.py: Record locator parsing (at:// and bsky.app)
- test_threads.py: Reply root/parent resolution
- test_attachments.py: Image validation and upload embeds
- test_composer.py: Post record assembly and submission
- test_bluesky_client.py: XRPC client status and decoding rules
- test_cli.py: End-to-end runs of the command line entry point
- test_config.py: YAML config, logging helpers and custom dates
- conftest.py: Shared fixtures and the fake PDS
"""

__version__ = "1.0.0"
