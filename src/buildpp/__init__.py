"""
buildpp: build-time source preprocessing.

Two independent entry points:
    preprocess(input, output, defines)      line preprocessor (#if, #include, ...)
    preprocess_css(mode, source, destination)  @import inlining + prefix stripping

Plus `build`/`merge` to drive both from a BuildSetup.
"""

__version__ = "0.1.0"
