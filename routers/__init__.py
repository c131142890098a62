# routers/__init__.py
# main.py registers each router itself.
