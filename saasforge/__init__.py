"""saasforge -- turns a one-line app description into a multi-tenant web app.

The package is split into two stages:

* :mod:`saasforge.parser` -- rule-based extraction of a ``Specification``
  from free text, plus relationship resolution.
* :mod:`saasforge.scaffolder` -- deterministic template rendering of that
  ``Specification`` into an ordered file manifest.

:mod:`saasforge.pipeline` wires both stages to the disk writer, the
dependency installer and the command line.
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
