"""Tests for library public API."""

from __future__ import annotations

import inspect

import paper_portal


class TestPublicAPI:
    def test_all_exports_importable(self):
        for name in paper_portal.__all__:
            obj = getattr(paper_portal, name, None)
            assert obj is not None, f"{name} not importable from paper_portal"

    def test_search_is_async(self):
        assert inspect.iscoroutinefunction(paper_portal.search)

    def test_export_functions_importable(self):
        from paper_portal import export_json, export_markdown
        assert callable(export_json)
        assert callable(export_markdown)

    def test_models_importable(self):
        from paper_portal import AggregatedSearch, Bookmark, Paper, PaperKey
        assert AggregatedSearch is not None
        assert Bookmark is not None
        assert Paper is not None
        assert PaperKey is not None

    def test_portal_is_async_context_manager(self):
        from paper_portal import PaperPortal
        assert inspect.iscoroutinefunction(PaperPortal.__aenter__)
        assert inspect.iscoroutinefunction(PaperPortal.__aexit__)
