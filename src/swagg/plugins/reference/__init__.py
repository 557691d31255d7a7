"""Markdown API reference rendered from the visitor pipeline.

:class:`ReferenceDocsHook` records every schema and operation it is shown and,
in the finish stage, renders ``API_REFERENCE.md`` with Jinja2.
"""

from swagg.plugins.reference.hook import ARTIFACT_NAME, ReferenceDocsHook

__all__ = ["ARTIFACT_NAME", "ReferenceDocsHook"]
