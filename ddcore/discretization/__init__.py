# ddcore/discretization/__init__.py
