"""
Disputes app for contested projects.

This app handles:
- Disputes opened by project participants
- Admin review and resolution (refund or release of the escrow)
- The scheduled sweep that auto-disputes ghosted and overdue projects
"""
