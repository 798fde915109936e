"""Exam-AI backend: practice question generation, exam grading and AI study chat."""

__version__ = "2.0.0"
