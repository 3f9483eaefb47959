'''
Python Markdown support for Latex math written between escaped brackets, \\(...\\) and \\[...\\].

Load the extension by name, 'bracketmath.escaped_brackets', or by instance:

    import markdown
    from bracketmath.ext.escaped_brackets import EscapedBracketsExtension

    html = markdown.markdown(text, extensions = [EscapedBracketsExtension(strict = 'warn')])
'''
