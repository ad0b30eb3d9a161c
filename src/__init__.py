import importlib
import sys

# Модули доступны и с префиксом "src." (например, для patch("src.pricing...")).
# Код импортирует их без префикса, поэтому оба имени должны указывать
# на один и тот же объект модуля.

_prefix = "src."
_packages = ["base", "catalog", "pricing", "promotions"]

for package in _packages:
    try:
        module = importlib.import_module(package)
    except ModuleNotFoundError:
        continue
    sys.modules[_prefix + package] = module

    for name, submodule in list(sys.modules.items()):
        if name.startswith(package + "."):
            sys.modules.setdefault(_prefix + name, submodule)
