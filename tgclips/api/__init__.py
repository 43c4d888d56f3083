"""REST API module for TGClips.

The application is built by ``tgclips.api.app.create_app``.
"""
