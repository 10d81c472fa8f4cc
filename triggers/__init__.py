"""
Triggers Package.

Scheduled job handlers (triggers.jobs), their timer Blueprint
(triggers.timers), the envelope admin HTTP handlers
(triggers.envelope_admin) and the database/config admin handlers
(triggers.admin).
"""
