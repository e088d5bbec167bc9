"""
Blue Button Finder - Main Package

Manual test harness for a local vision-language model:
- Screen and region capture
- Ollama vision requests and free-text reply parsing
- Image-to-screen coordinate mapping with monitor mismatch correction
- Optional mouse move/click on a detected button
"""

__version__ = '0.1.0'
__author__ = 'Blue Button Finder Team'
