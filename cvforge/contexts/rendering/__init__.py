"""
Rendering Context

Responsibilities:
- Validates render requests and sanitizes template names and options
- Runs each render job in an isolated, always-cleaned workspace
- Compiles populated LaTeX to PDF under a hard timeout
- Checks artifacts (non-empty, under the size ceiling) before delivery
- Renders one CV with several templates concurrently

Owns: Render jobs, compilation, artifact delivery
Never: Modifies CV content or template files
"""
