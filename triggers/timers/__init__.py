# ============================================================================
# TIMER TRIGGERS MODULE
# ============================================================================
# STATUS: Trigger layer - Timer-based scheduled triggers
# PURPOSE: Blueprint registering the six scheduled jobs
# ============================================================================
"""
Timer Triggers Module.

Usage in function_app.py:
    from triggers.timers import timer_bp
    app.register_blueprint(timer_bp)

Exports:
    timer_bp: Azure Functions Blueprint with all timer triggers
"""

from .timer_bp import bp as timer_bp

__all__ = ['timer_bp']
