from collections.abc import Mapping

# possible fates of an input record
RECORD_OUTCOMES = ("routed", "skipped_no_key", "dropped_type_mismatch")


class SplitCounter(Mapping):
    """
    Statistics of a split run.
    SplitCounter implements two interfaces to access the statistics:
    1. as a nested dict, e.g. splitCounter['outputs']['in.MAPPED.bam']
    2. as a flat dict, with the level keys separated by '/', e.g.
       splitCounter['outputs/in.MAPPED.bam']
    """

    _SEP = "\t"
    _KEY_SEP = "/"

    def __init__(self):
        self._stat = {"total": 0}
        for outcome in RECORD_OUTCOMES:
            self._stat[outcome] = 0
        self._stat["n_outputs"] = 0
        self._stat["outputs"] = {}

    def __getitem__(self, key):
        if key in self._stat:
            return self._stat[key]

        if isinstance(key, str) and self._KEY_SEP in key:
            section, subkey = key.split(self._KEY_SEP, 1)
            nested = self._stat.get(section)
            if isinstance(nested, dict) and subkey in nested:
                return nested[subkey]

        raise KeyError(key)

    def __iter__(self):
        return iter(self._stat)

    def __len__(self):
        return len(self._stat)

    def add_record(self, outcome):
        if outcome not in RECORD_OUTCOMES:
            raise ValueError(f"Unknown record outcome: {outcome}")
        self._stat["total"] += 1
        self._stat[outcome] += 1

    def set_outputs(self, counts):
        """Store the number of records per output filename."""
        self._stat["outputs"] = dict(counts)
        self._stat["n_outputs"] = len(counts)

    def flatten(self):
        """return a flattened dict (formatted same way as .stats file)"""
        flat_stat = {}
        for k, v in self._stat.items():
            if isinstance(v, dict):
                for subkey, subvalue in v.items():
                    flat_stat[self._KEY_SEP.join([k, subkey])] = subvalue
            else:
                flat_stat[k] = v
        return flat_stat

    def format_yaml(self):
        return {
            k: (dict(v) if isinstance(v, dict) else v) for k, v in self._stat.items()
        }

    def save(self, outstream, yaml=False):
        """save SplitCounter to a tab-delimited text file or as YAML.
        Parameters
        ----------
        outstream: file handle
        yaml: is output in yaml format or table
        """
        if yaml:
            import yaml

            yaml.dump(
                self.format_yaml(), outstream, default_flow_style=False, sort_keys=False
            )
        else:
            for k, v in self.flatten().items():
                outstream.write("{}{}{}\n".format(k, self._SEP, v))

    def __repr__(self):
        return str(self._stat)
