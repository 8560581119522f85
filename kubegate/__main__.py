"""
CLI entry point, when used as a module: `python -m kubegate`.

Useful for debugging in the IDEs (use the start-mode "Module", module "kubegate").
"""
from kubegate import cli

if __name__ == '__main__':
    cli.main()
