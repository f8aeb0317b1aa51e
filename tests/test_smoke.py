def test_helpscope_imports():
    """Verify all helpscope submodules can be imported without errors."""
    import helpscope
    import helpscope.cli
    import helpscope.core
    import helpscope.discovery
    import helpscope.executor
    import helpscope.introspection
    import helpscope.parser
    import helpscope.sandbox

    assert helpscope.__version__
    assert helpscope.HelpParser is not None
