"""flowguard - security policy compiler for agentic CI workflows.

Turns a workflow's decoded frontmatter into a vetted execution policy:
network egress and firewall settings, sandbox defaults, strict-mode review,
the consolidated safe-outputs plan, and the concurrency lane the job runs in.
"""

__version__ = "0.3.0"
