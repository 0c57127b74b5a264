from toml import TomlEncoder


class IndentedTomlEncoder(TomlEncoder):
    """Writes nested tables with one tab per level, so node map dumps read like the category tree"""
    def dump_sections(self, o, sup, indent=0):
        retstr, subtables = super().dump_sections(o, sup)
        if not subtables:
            return (retstr, subtables)
        for key, value in subtables.items():
            name = f"{sup}.{key}" if sup else key
            body, _ = self.dump_sections(value, name, indent=indent+1)
            if not body:
                continue
            if retstr and not retstr.endswith("\n\n"):
                retstr += "\n"
            retstr += "\t"*indent + f"[{name}]\n"
            retstr += "".join("\t"*indent + line + "\n" for line in body.split("\n")[:-1])
        return (retstr, self._dict())
