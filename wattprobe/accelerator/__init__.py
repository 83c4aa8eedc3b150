"""GPU utilisation records, a stand-in GPU source and the front that selects a source."""