import json
import os

DEFAULT_ABI_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'contracts', 'abis')

class ABIManager:
    def __init__(self, abi_dir=DEFAULT_ABI_DIR):
        """
        Initializes the ABIManager with the directory containing contract artifact JSON files.

        :param abi_dir: The directory where artifacts are stored.  Defaults to `contracts/abis` next
        to this module, so loading does not depend on the working directory of the process.
        """
        self.abi_dir = abi_dir
        self._cache  = {}

    def load_abi(self, artifact_name):
        """
        Loads the ABI from a contract artifact JSON file.  Artifacts are only read from disk once.

        :param artifact_name: The name of the artifact file (without .json extension).
        :return: The ABI extracted from the artifact.
        :raises FileNotFoundError: If the specified file does not exist.
        :raises KeyError: If the 'abi' key is not found in the JSON data.
        """
        if artifact_name in self._cache:
            return self._cache[artifact_name]

        file_path = os.path.join(self.abi_dir, f"{artifact_name}.json")
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"No such file: {file_path}")

        with open(file_path, 'r') as file:
            data = json.load(file)
            if 'abi' not in data:
                raise KeyError(f"Missing 'abi' key in {file_path}")

        self._cache[artifact_name] = data['abi']
        return data['abi']
