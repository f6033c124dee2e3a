pytest_plugins = ["spanner_chaos.testing.fixtures"]
