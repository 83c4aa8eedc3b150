"""CPU and DRAM component energy sources and the selection between them."""