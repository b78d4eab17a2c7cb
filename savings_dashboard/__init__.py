"""Top-level package for the Savings Dashboard.

The primary modules are:

* ``calculations`` – month derivation with carryover and goal aggregation
* ``periods`` – two-period plan built on the calculator
* ``storage`` – local JSON cache and SQLite persistence
* ``export`` – CSV export of derived months
* ``visualization`` – functions that generate Plotly figures
* ``dashboard`` – the Streamlit page that ties everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run savings_dashboard/Home.py
```
"""

from . import calculations  # noqa: F401  # re-exported for convenience
from . import periods  # noqa: F401  # re-exported for convenience

__all__ = ["calculations", "periods"]
