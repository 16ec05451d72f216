"""
Component Module
================

Component source parsing, template storage and scope resolution.

Components:
- parser: Split component files into template/script/style sections
- sandbox: Sandboxed Jinja2 environments with binding warnings
- resolver: Build render targets with the override-wins scope rules
- store: Template directory access
"""
