import os
from typing import List


# File I/O
# ----------------------------------------------------------------------------------------------------------------------

def find_all_files_with_extension(dir_path: str, extension: str) -> List[str]:
    file_names = []
    if extension[0] != '.':
        extension = '.' + extension
    for fn in sorted(os.listdir(dir_path)):
        if fn.endswith(extension):
            file_names.append(fn)
    return file_names


def read_file(path: str, file_name: str = None) -> str:
    if path is None:
        file_path = file_name
    elif file_name is None:
        file_path = path
    else:
        file_path = os.path.join(path, file_name)
    with open(file_path, 'r') as f:
        text = f.read()
    return text
