"""The xmod permission tool: mode parsing, reporting, event logging, signals and traversal."""