# Utils package - logging, configuration checks, background work, request parsing
