"""log-explorer — query/state engine for searching, paging and live-tailing logs."""
