"""Allow ``python -m docfold``."""
from docfold.cli._dispatcher import run

if __name__ == "__main__":
    run()
