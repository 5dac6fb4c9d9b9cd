"""
ScheduleWise: weekly course schedule manager with ICS export and TXT import.
"""
__version__ = "0.1.0"
