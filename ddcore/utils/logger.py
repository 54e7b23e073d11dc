# -*- coding: utf-8 -*-
"""
Minimal timestamped logger for assembler diagnostics (stdout/stderr).
"""
import sys, time

def _stamp() -> str: return time.strftime('%H:%M:%S')

def info(msg: str):  print(f"[{_stamp()}] {msg}", file=sys.stdout)
def warn(msg: str):  print(f"[{_stamp()}] WARNING: {msg}", file=sys.stderr)
