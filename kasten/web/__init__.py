"""Site generation: routes, the graph cache and the site driver."""
