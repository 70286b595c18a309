"""taskpulse — background jobs for a personal task tracker."""
