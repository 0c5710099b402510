"""
Media Card CLI - Command-line interface for the media card core.

Commands:
- extract: Show metadata derived from a media path
- classify: Show the rendering mode of media references
- play: Run a slideshow from the configured source
- config: Inspect and update the configuration file
"""
