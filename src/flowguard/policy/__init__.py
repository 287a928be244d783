"""
Workflow security policy: network, firewall, sandbox, permissions,
strict-mode review and concurrency lanes.
"""
