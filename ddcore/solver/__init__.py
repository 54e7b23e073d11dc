# ddcore/solver/__init__.py
