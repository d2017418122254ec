"""Inspector core: command channel, worker, store gateway and result sinks."""
