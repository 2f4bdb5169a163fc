"""Side channels notified after an audit is stored."""
