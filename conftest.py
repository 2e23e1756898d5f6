import os
import sys

# Tests import `classes.*` and `server` from the project root.
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))
