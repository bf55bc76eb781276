"""
Assets Module
=============

Resolution, fetching and inlining of external scripts and stylesheets.

Components:
- resolver: Find external script/stylesheet tags in HTML markup
- fetcher: Concurrently retrieve local and remote asset content
- inliner: Rewrite tags to inline content and inject window.data
"""
