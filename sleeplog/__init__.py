"""SleepLog: infant sleep-state log with a day-partitioned timeline."""
