# watchrun/__init__.py

"""
watchrun - run shell commands when watched paths change
"""
__version__ = "0.1.0"
