def print_table(rows, headers):
    """Left aligned columns sized to the widest cell"""
    widths = [max(len(str(row[i])) for row in [headers, *rows]) for i in range(len(headers))]
    line = "  ".join(f"{{:<{w}}}" for w in widths)
    print(line.format(*headers))
    print("  ".join("-"*w for w in widths))
    for row in rows:
        print(line.format(*[str(cell) for cell in row]))
