"""Staff and client web portal rendered from the sanctuary JSON API."""
