# automodel/data/__init__.py
