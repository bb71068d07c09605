"""Runtime plumbing shared by the gate: context, logging, process and network boundaries."""
