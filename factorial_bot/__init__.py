"""
Factorial Bot - Automated time tracking for Factorial HR.

This package drives the Factorial web application with Playwright to fill
attendance rows that still show missing hours.
"""

__version__ = '1.0.0'
__author__ = 'Factorial Automation'

from .models import WorkEntry, LogResult, WeekSummary
from .config import Config
from .playwright_client import FactorialClient, LoginError, NavigationError, run_session
from .time_tracker import TimeTracker, FormValidationError

__all__ = [
    'WorkEntry',
    'LogResult',
    'WeekSummary',
    'Config',
    'FactorialClient',
    'LoginError',
    'NavigationError',
    'run_session',
    'TimeTracker',
    'FormValidationError',
]
