"""syllabus-sync: turn course-syllabus text into calendar event candidates."""

__version__ = "0.1.0"
