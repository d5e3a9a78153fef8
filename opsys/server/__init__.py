"""Server that runs client tasks and returns results over named pipes."""